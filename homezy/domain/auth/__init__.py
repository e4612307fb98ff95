"""Auth domain - registration, login and token refresh"""
