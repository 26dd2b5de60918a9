"""Lifecycle definitions"""
