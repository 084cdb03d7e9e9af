"""Shift Booking package.

Recurring weekly shift slots, per-slot capacity limits and employee booking
requests (pending/approved/rejected), organized by feature modules with a thin
Flask controller layer over service/repository layers.
"""
