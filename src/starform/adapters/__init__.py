"""
StarForm Web Adapters
"""
