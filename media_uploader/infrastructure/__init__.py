"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: S3 uploads (boto3, httpx) and Cognito credentials
- media: image encoding (Pillow) and video thumbnails (FFmpeg)
"""
