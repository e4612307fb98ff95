"""Notifications domain - in-app notification inbox"""
