class Widget:
    def __init__(self, name):
        self.name = name

    def greet(self):
        return f"hello from {self.name}"
