"""
Form Session Engine

Lets a respondent work through a multi-section questionnaire, keeps the
in-progress answers in local storage so a session survives a restart,
and turns the answers into the submission payload the backend expects.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Rendering or styling of inputs
    - Form administration (creation, cloning, status changes)
    - Export and reporting
    - Authentication

The backend is reached only through formsession.client.
"""

__version__ = "0.1.0"
