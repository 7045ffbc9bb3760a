raise ImportError("this library cannot be loaded")
