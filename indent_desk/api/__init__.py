"""Form routes, sheet endpoint, templates and workflow tracing.

Blueprints:
    dashboard.bp        — indent form, receipt, PDF, JSON API
    sheet_api.sheet_bp  — Apps Script compatible /exec endpoint
"""
