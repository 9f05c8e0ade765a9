from .mcp_server.stdio_server import main

main()
