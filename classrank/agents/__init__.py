"""
Agent implementations for ClassRank.

Contains the modules that take reviews through an aggregation run:
- Ingestion (RateMyProfessors client, mock source)
- Course Code Normalizer
- Review Validity Filter
- Professor Summary Builder
- Aggregation (Course Aggregator + Course Report Writer)
"""
