"""Infrastructure adapters (order sources, connection backends)"""
