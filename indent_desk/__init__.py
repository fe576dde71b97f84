"""
Indent Desk — Indent / Issue Request intake

Packages:
    api/        Form routes, sheet endpoint, templates, tracing
    forms/      Indent PDF export
    core/       Numbering, stock ledger, sheet store, config, paths
"""
