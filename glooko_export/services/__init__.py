"""Export services: ZIP validation, workbook export, progress and summary."""
