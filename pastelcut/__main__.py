from pastelcut.cli import main

main()
