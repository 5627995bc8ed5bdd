"""Sales-detail report building for sales_reports

This package turns fetched Shopify orders into report artifacts. It holds
the memo normalizer for line-item custom attributes, the row formatters for
the standard, QuickBooks style and internal-vendors layouts, and the CSV,
XLSX and PDF renderers.

Report types are registered in ``definitions``; the report job worker picks
a definition by type and asks it for the bytes of every format it produces.
Nothing here touches the database or the network except the PDF renderer,
which drives a headless Chromium."""
