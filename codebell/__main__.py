from codebell.server import main

main()
