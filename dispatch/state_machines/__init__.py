#Order and agent lifecycle rules used by the dispatch pipeline.
