"""Accounts - people, credentials, role memberships and login"""
