"""Brand Visibility & Citation Metrics Engine.

Deterministic pipeline turning LLM response text and citation URLs into
ranked brand-performance metrics:
  1. Text Preprocessor & Sentence Splitter
  2. Brand Matcher (exact, abbreviation, token, fuzzy)
  3. URL Cleaner & Citation Classifier (brand / earned / social)
  4. Record Scorer (mentions, decay-weighted depth, weighted citations, sentiment)
  5. Metrics Aggregator (smoothing, confidence intervals, ranking)

Input:  ResponseRecord[] + BrandRoster
Output: AggregatedMetricSet per scope (overall, platform, topic, persona)
"""
