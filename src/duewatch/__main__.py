from duewatch.cli.main import main

main()
