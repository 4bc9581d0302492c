"""Access policy API"""
