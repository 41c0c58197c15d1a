"""
Applications app - rental applications and their status lifecycle.

Provides:
- ApplicationForm: A firm's listing-specific application form
- Application: A household's application with a closed status enum
- ApplicationTimelineEntry: Append-only audit trail of status changes
  and payment notices
- ApplicationStateMachine: The only write path for application status
"""
