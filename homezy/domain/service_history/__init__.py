"""Service history domain - record of work done on a home"""
