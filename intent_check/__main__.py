from intent_check.cli.intent_check import main

main()
