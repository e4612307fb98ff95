"""Messaging domain - homeowner/pro conversations"""
