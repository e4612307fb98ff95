"""Homezy - home-services marketplace API"""
