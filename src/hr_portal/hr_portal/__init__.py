"""HR Portal package.

Attendance tracking (check-in, breaks, checkout), HR corrections and
work-hours reports, organized by feature modules with a thin Flask JSON
controller layer over service/repository layers.
"""
