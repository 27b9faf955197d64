"""Domain packages: catalog, customers and scheduling"""
