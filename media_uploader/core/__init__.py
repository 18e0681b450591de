"""
Core upload logic.

This package doesn't import boto3, httpx, Pillow or any other
infrastructure concern; strategies and encoders are passed in.
"""
