"""Workforce Ops package.

Feature modules (profiles, rosters, working_hours, payroll, ...) each carry a
model/repository/service/controller split, wired together in ``container``.
"""
