"""Lab Portal package.

Member registration, approval and lab check-in/check-out for a student
engineering club. Organized by feature modules (members, attendance,
approvals, ...) on top of a document-store abstraction, with a thin Flask
controller layer over the service layer.
"""
