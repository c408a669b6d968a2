#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
config.py

Configuration constants and defaults for the usage-billing engine.

Every value can be overridden through an environment variable so the same
code runs unchanged in tests, in the CLI and inside a worker process.

Money
-----
Charge properties carry amounts in *major* units ("1.25" EUR), fees are
always expressed in *minor* units (cents). The number of minor-unit digits
per currency lives in CURRENCY_EXPONENTS; anything not listed uses 2.
"""

import os

# ---------------------------------------------------------------------
# Defaults: currency
# ---------------------------------------------------------------------
# DEFAULT_CURRENCY:
# - Used when a plan definition does not declare a currency.
# - Override with USAGE_BILLING_DEFAULT_CURRENCY.
DEFAULT_CURRENCY = os.getenv("USAGE_BILLING_DEFAULT_CURRENCY", "EUR").strip().upper()

# CURRENCY_EXPONENTS:
# - Minor-unit digits for currencies that do not use cents.
# - Only zero-decimal currencies need to be listed.
CURRENCY_EXPONENTS = {
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "CLP": 0,
}
DEFAULT_CURRENCY_EXPONENT = 2

# ---------------------------------------------------------------------
# Payment dispatch (retry policy)
# ---------------------------------------------------------------------
# PAYMENT_MAX_ATTEMPTS:
# - Total attempts (first try included) for transient provider failures.
PAYMENT_MAX_ATTEMPTS = int(os.getenv("USAGE_BILLING_PAYMENT_MAX_ATTEMPTS", "6"))

# PAYMENT_BASE_DELAY / PAYMENT_MAX_DELAY:
# - Exponential backoff: delay = min(max, base * 2 ** attempt) + jitter.
PAYMENT_BASE_DELAY = float(os.getenv("USAGE_BILLING_PAYMENT_BASE_DELAY", "1.0"))
PAYMENT_MAX_DELAY = float(os.getenv("USAGE_BILLING_PAYMENT_MAX_DELAY", "60.0"))

# PAYMENT_PROVIDER_URL:
# - Endpoint receiving finalized invoices (HttpPaymentProvider).
# - Empty means "not configured"; the CLI never dispatches in that case.
PAYMENT_PROVIDER_URL = os.getenv("USAGE_BILLING_PAYMENT_PROVIDER_URL", "").strip()

# PAYMENT_PROVIDER_TIMEOUT:
# - Overall request timeout in seconds (connect timeout is capped at 10s).
PAYMENT_PROVIDER_TIMEOUT = float(os.getenv("USAGE_BILLING_PAYMENT_PROVIDER_TIMEOUT", "30.0"))

# ---------------------------------------------------------------------
# Plan definitions
# ---------------------------------------------------------------------
# PLANS_DIR:
# - Directory holding YAML/JSON plan definitions (see plans/loader.py).
PLANS_DIR = os.getenv("USAGE_BILLING_PLANS_DIR", "plans")

# ---------------------------------------------------------------------
# Tracing
# ---------------------------------------------------------------------
# TRACE_FILE:
# - Optional JSONL trace of rating runs and payment dispatch attempts.
# - Empty disables tracing unless the CLI passes --trace-path.
TRACE_FILE = os.getenv("USAGE_BILLING_TRACE_FILE", "").strip()
