# Utils package - logging, configuration checks and request parsing helpers
