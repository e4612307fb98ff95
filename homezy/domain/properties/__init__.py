"""Properties domain - homeowner properties and rooms"""
