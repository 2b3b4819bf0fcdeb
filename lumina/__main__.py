from lumina.cli import main

main()
