"""Customers (affiliates) and their referral codes."""

from refpoints.customers.service import CustomerService, customer_service, generate_referral_code

__all__ = ["CustomerService", "customer_service", "generate_referral_code"]
