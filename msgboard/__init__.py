"""
Markdown message board service.
"""
