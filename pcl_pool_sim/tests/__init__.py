"""Test suite for the concentrated pool simulation"""
