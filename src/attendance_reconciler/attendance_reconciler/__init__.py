"""Attendance Reconciler package.

Pulls punch events from facility biometric gateways and reconciles them into
one attendance record per employee per day. Organized by feature modules
(devices, attendance, sync, reports, ...) with a thin Flask controller layer
over service/repository layers.
"""
