# backend/app/errors.py

"""
Failure taxonomy for the primitive pipeline.

Every stage either returns its output or raises one of these. The HTTP layer
maps `status_code` straight onto the response, so a client can tell a bad
upload (415/422) apart from a broken tool on our side (5xx).
"""


class PipelineError(Exception):
    code = "pipeline_error"
    status_code = 500


class UnsupportedMediaType(PipelineError):
    code = "unsupported_media_type"
    status_code = 415


class DecodeFailure(PipelineError):
    code = "decode_failure"
    status_code = 422


class VectorizationFailure(PipelineError):
    code = "vectorization_failure"
    status_code = 502


class FilesystemFailure(PipelineError):
    code = "filesystem_failure"
    status_code = 500


class OptimizationFailure(PipelineError):
    code = "optimization_failure"
    status_code = 502
