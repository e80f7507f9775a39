"""
CRM Integration Test Suite
==========================

Coverage for:
- KeyCRM HTTP client (request shape, status handling, debug trace)
- Order sync pipeline (eligibility, failure notes, retries, policy hooks)
"""
