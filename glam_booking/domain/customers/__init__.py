"""Customers domain - Customer directory and "my appointments" lookup"""
