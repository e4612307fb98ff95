"""Home projects domain - renovation tracking with tasks and costs"""
