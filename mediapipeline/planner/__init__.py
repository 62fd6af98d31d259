"""Build, order, annotate and estimate processing graphs from job specifications."""