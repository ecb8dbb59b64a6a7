"""Route Modules — one file per resource/concern outside the API dispatcher."""
