# leadqa/__init__.py
# ===================
# LeadQA - insurance call lead validation
#
# Pipeline (strictly sequential, one file at a time):
#   1. Derive the caller phone number from the audio file name
#   2. Look the caller up in the identity verification service (Melissa)
#   3. Transcribe the call with speaker tags (Deepgram)
#   4. Extract insurance-intake fields + agent feedback (OpenAI)
#   5. Reconcile identity data with transcript data into one verdict
#
# Public API:
#   run_pipeline(audio_bytes, filename, content_type) → dict
