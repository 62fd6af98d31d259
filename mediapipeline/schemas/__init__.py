"""Data types for job specifications, processing plans, media info, durations and job status."""