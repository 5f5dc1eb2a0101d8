"""
Same-as strategies backed by external knowledge bases
"""
