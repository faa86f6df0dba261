# leadqa/api/__init__.py
# =======================
# API Layer - LeadQA
#
#   POST /api/v1/validate-lead  (multipart audio_file)
#   GET  /health
