"""Infrastructure Layer: Contains concrete implementations and adapters.

Connects the application to the outside world (the REST API, configuration
files, the console) by implementing the interfaces defined in the domain
layer. Also holds the resource clients and their paging engine.
"""
