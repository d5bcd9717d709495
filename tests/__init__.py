"""
Test suite for the Hospital Management System.

Covers authentication, sequential identifiers, the appointment lifecycle and
the medical report approval workflow.
"""
