from .loader import load_plan, load_plans
from .schema import Charge, Plan

__all__ = ["Charge", "Plan", "load_plan", "load_plans"]
