"""Service reminders domain - recurring maintenance due dates"""
