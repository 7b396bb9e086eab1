"""
Core app - Shared abstractions and utilities.

This app provides:
- AppContext: explicitly constructed runtime configuration (token secret,
  algorithm, lifetime) handed to components instead of module globals
- The error taxonomy raised by services
- The uniform {success, message, data} response envelope and the
  exception handlers that render failures into it
"""
