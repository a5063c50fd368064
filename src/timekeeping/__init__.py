"""Timekeeping package.

This package is organized by feature modules (attendance, timesheets,
geofence, ...) with a thin Flask controller layer and service/repository
layers underneath.
"""
