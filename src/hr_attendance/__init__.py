"""HR attendance & leave accounting package.

Organized by feature modules (attendance, leave, holidays, working_hours,
reports, qr) with a thin Flask controller layer over service/repository
layers.
"""
