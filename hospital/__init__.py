"""
Hospital Management System

A FastAPI service for the appointment lifecycle (booking, admin review,
doctor completion) and the medical report approval workflow.
"""

__version__ = "1.0.0"
