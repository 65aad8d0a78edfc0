"""
Keyword indexing package.

- normalizer: field text normalization
- analyzers: tokenization, stemming backends and word truncation
- stopwords: the packaged default list of unindexed words
- storage: transactional SQLite store for the shared keyword index
- indexer: keyword accumulation and the commit protocol
"""
