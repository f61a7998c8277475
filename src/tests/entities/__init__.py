"""Test entities spread over two bounded contexts.

``user_db`` and ``employee_db`` each have their own declarative base, and
both define a ``User`` entity, so resolution has to go by mapping rather
than by class name.
"""
