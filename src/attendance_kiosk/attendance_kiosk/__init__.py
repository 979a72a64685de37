"""Face attendance kiosk package.

Organized by feature modules (identities, recognition, attendance, reports)
with a thin Flask controller layer over service/repository layers. The punch
state machine in ``attendance.service`` is the only component with real
invariants; everything else feeds it or projects its records.
"""
