"""
Pipeline orchestration: the coordinator and its execution contexts.
"""
