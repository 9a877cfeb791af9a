"""
Plugin commands discovered by the oimerge CLI.
"""
