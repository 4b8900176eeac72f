"""
Search indexing and query package.

This package provides a pure-Python, in-memory search stack:
- analyzers: Tokenizer and filters (markup stripping, folding, stop words, stemming)
- chunker: Heading-based document chunking
- inverted_index: Read-only term -> postings index and its build-time writer
- indexer: Corpus ingestion
- stats / scorer: IDF, term coverage and chunk ranking
- fuzzy: Edit-distance term expansion
- highlighter: Preview windows with marked matches
- suggestions: Prefix completions
- scope: Version scoping and duplicate collapsing
- readiness: Index readiness signal
"""
