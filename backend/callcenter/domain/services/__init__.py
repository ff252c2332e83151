"""Domain services: pool store, retry scheduler, dialer, aggregator"""
