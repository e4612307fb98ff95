"""Expenses domain - home spending records and summaries"""
