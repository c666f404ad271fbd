from libgen.cli import main

main()
