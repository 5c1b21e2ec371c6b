"""
Core modules for vyra.

This package contains the generation pipeline:
- Configuration and lazily built provider/store handles
- Quota precheck and tier resolution
- Prompt optimization and image generation
- Transactional usage ledger
- Per-request orchestration
"""
