"""Call center auto-dialer backend"""
