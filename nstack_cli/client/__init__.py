"""
NStack Client.

Transport core for calls to the NStack server:

- result:    Success / ClientError / ServerError and format_result
- codec:     msgpack envelope encoding of typed values
- requests:  signed httpx requests (see auth)
- transport: one HTTPS round trip per call, every failure as a Result
- session:   builds the httpx client from settings
"""
