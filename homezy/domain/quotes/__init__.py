"""Quotes domain - priced proposals against claimed leads"""
