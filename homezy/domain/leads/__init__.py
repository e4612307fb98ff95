"""Leads domain - homeowner requests, marketplace and claims"""
