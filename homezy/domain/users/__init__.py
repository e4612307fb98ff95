"""Users domain - profiles, professional directory and uploads"""
