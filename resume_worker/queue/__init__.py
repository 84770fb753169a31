from .consumer import JobHandler, MessageConsumer

__all__ = ['JobHandler', 'MessageConsumer']
