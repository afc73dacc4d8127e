#!/usr/bin/env python3
"""
deploy_frontend.py — Deploy a static site build to S3 and invalidate CloudFront.

Finds the CloudFront distributions serving the given domains, empties their
origin buckets, uploads the build directory, invalidates /* on every
distribution and posts a Slack message when DEPLOY_SLACK_WEBHOOK_URL is set.

Usage:
    uv run python scripts/deploy_frontend.py --domain www.example.com --dir dist/
    uv run python scripts/deploy_frontend.py --domain www.example.com --dir dist/ --dry-run

Same flags as the `site-deploy` console script.
"""

from __future__ import annotations

from site_deploy.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
