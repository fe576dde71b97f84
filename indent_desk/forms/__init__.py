"""PDF export for submitted indents.

Key exports:
    generate_indent_pdf()   — Render a logged submission as an Indent PDF
"""
